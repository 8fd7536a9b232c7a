"""LLM prompts for answering from Stack Overflow sources."""

ANSWER_INSTRUCTIONS = (
    "The above sources are excerpts from related StackOverflow questions. "
    "Use them to help answer the below question from our user. "
    "Provide links to the sources in markdown whenever possible:"
)


def get_answer_prompt(user_input: str) -> str:
    """Wrap the user's question in the answering instructions."""
    return f"{ANSWER_INSTRUCTIONS}\n\n{user_input}\n"
