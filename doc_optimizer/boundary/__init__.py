"""
Boundary layer for external system integrations.

Handles interactions with the local inference service and the filesystem
holding transient uploads.
"""
