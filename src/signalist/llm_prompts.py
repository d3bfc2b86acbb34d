"""
LLM Prompt Templates
====================

Prompts for the two emails Signalist writes with Gemini:

- ``PERSONALIZED_WELCOME_EMAIL_PROMPT``: one intro paragraph for a new user,
  filled with ``{{userProfile}}``
- ``NEWS_SUMMARY_EMAIL_PROMPT``: the daily market news digest, filled with
  ``{{newsData}}`` (JSON list of articles)

Placeholders use double braces and are substituted with plain string
replacement, so literal braces elsewhere in the prompt are safe.
"""

PERSONALIZED_WELCOME_EMAIL_PROMPT = """Write a short, personalized introduction for a welcome email to a new Signalist user.

Signalist is a stock market app: users track a watchlist, search stocks, and receive
AI-summarized market news by email.

User profile:
{{userProfile}}

Requirements:
- 2 to 3 sentences, warm and confident, no hype
- Reference the user's investment goals and preferred industry where it reads naturally
- Mention one concrete way Signalist helps them (watchlist alerts, daily news summary, stock search)
- Plain text only: no greeting line, no sign-off, no markdown, no emojis
- Do not give investment advice or predict prices

Return only the introduction text."""


NEWS_SUMMARY_EMAIL_PROMPT = """Summarize today's market news for a Signalist daily email.

News articles (JSON, newest first):
{{newsData}}

Write the email body as simple HTML fragments (no <html>, <head> or <body> tags):
- Group related articles under short section headings using <h3>
- For each story write 2-3 plain-English sentences: what happened and why it matters to an investor
- When an article has a "symbol", name the ticker in <strong> the first time it appears
- Link each story's source with <a href="URL">Read more</a> using the article's url
- Finish with one <p> giving a neutral bottom line for the day

Rules:
- Use only facts present in the articles; do not invent numbers, quotes or events
- No investment advice, price targets or buy/sell language
- If the list is empty, write one <p> saying there was no notable market news today

Return only the HTML fragment."""
