"""
Optimization prompt templates.

Defines the prompts wrapped around each chunk before it is sent to the model.

Dependencies: langchain_core.prompts
System role: Prompt construction for inference calls
"""

from langchain_core.prompts import PromptTemplate

STANDARD_PROMPT = PromptTemplate.from_template(
    """You are a resume optimization expert. Improve the following content while keeping its structure and key information, but make it more professional and impactful.

Return only the rewritten text.

{content}"""
)

DETAILED_PROMPT = PromptTemplate.from_template(
    """Analyze and optimize this resume section to maximize professional impact. Focus on:
- Achievement-oriented bullet points
- Quantifiable results
- Industry-specific keywords
- Clear hierarchy and readability

Return only the rewritten text.

Original content:
{content}"""
)

PROMPTS: dict[str, PromptTemplate] = {
    "standard": STANDARD_PROMPT,
    "detailed": DETAILED_PROMPT,
}


def build_prompt(content: str, style: str = "standard") -> str:
    """
    Render the optimization prompt for one chunk.

    Args:
        content: Chunk text
        style: Template name ("standard" or "detailed")

    Returns:
        str: Prompt text

    Raises:
        KeyError: Unknown template style
    """
    return PROMPTS[style].format(content=content)
