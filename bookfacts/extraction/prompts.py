"""
Prompt template for book fact extraction.

The template is fixed; the only substitution point is {user_prompt}.
"""

PLACEHOLDER = "{user_prompt}"

PROMPT_TEMPLATE = """
# [Instruction]
You are an expert AI that analyzes a user's query to extract factual information about a book. Your single task is to populate a JSON object with the data found directly in the user's text.

# [Input Data]
- user_prompt: {user_prompt}

---
# [Extraction Rules]
1.  Carefully read the `user_prompt`.
2.  Extract only the following 6 pieces of information, and only if they are explicitly mentioned:
    * `title`: The title of the book.
    * `author`: The author's name.
    * `publisher`: The publisher's name.
    * `publicationYear`: The year the book was published.
    * `genre`: The genre of the book.
    * `language`: The language of the book.
3.  If a piece of information cannot be found in the prompt, you MUST leave its value as an empty string `""`.
4.  Do not infer, guess, or add any information that is not explicitly stated in the `user_prompt`.

# [Output JSON Format]
Respond with ONLY the following JSON object. Do not include any other text, explanations, or markdown formatting.
{
  "title": "",
  "author": "",
  "publisher": "",
  "publicationYear": "",
  "genre": "",
  "language": ""
}
"""


def build_prompt(question: str) -> str:
    """Insert the raw question into the template."""
    # str.format would trip over the literal JSON braces
    return PROMPT_TEMPLATE.replace(PLACEHOLDER, question, 1)
