"""Prompt templates for the decision gate and the content synthesizer.

Both are Jinja templates bound against the composed conversation state. The
gate prompt asks for exactly one of two literal markers; the format prompt
asks for the exact heading layout the parser understands.
"""

EMAIL_MARKER = "[EMAIL]"
SKIP_MARKER = "[SKIP]"

SHOULD_EMAIL_TEMPLATE = """
<context>
# Current Conversation
Message: {{ message.content.text }}
Previous Context: {{ recent_messages }}

# Agent Context
Name: {{ agent_name }}
Background: {{ bio }}
Key Interests: {{ topics }}
</context>

<evaluation_steps>
1. Extract key quotes:
- Exact phrases about the person's role or company
- Specific technical claims
- Metrics or numbers
- Stated intentions

2. Assess information quality:
- Professional context is present
- Technical specifics are present
- Concrete project details are present

3. Evaluate readiness:
- Enough context to summarize
- Actionable information was shared
- A follow-up would be useful now

4. Check partnership signals:
- Explicit interest in collaborating
- Technical capability alignment
- Resource commitment
</evaluation_steps>

<instructions>
First, extract the most relevant quotes from the message that indicate email
readiness. Put them in <relevant_quotes> tags.

Then decide whether a summary email should be sent. Respond with exactly one
of these lines:
[EMAIL] - This warrants sending an email because <one sentence reason>
[SKIP] - This does not warrant an email

Base the decision only on information explicitly present in the extracted
quotes.
</instructions>
"""

EMAIL_FORMAT_TEMPLATE = """
<context>
# Conversation Details
User: {{ user_info.display_name }} ({{ platform }})
Bio: {{ bio }}
Recent Messages: {{ recent_messages }}
Latest Message: {{ message_content }}
</context>

<instructions>
First, extract the most relevant quotes from the conversation that should be
included in the email. Put them in <relevant_quotes> tags.

Then write an email summary using EXACTLY this format:

Subject: [Clear, specific title with role/company]

Background:
[2-3 sentences about who they are and relevant context]

Key Points:
• [3-5 bullet points about their main interests or proposals]

Technical Details:
• [Technical detail, if available]

Next Steps:
1. [First action item]
2. [Second action item]

Omit Technical Details and Next Steps when there is not enough information.
Only include information supported by the extracted quotes.
</instructions>
"""
