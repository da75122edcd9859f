
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

# The user's text is interpolated verbatim between double quotes. Nothing is
# escaped, so a message can steer the instructions around it; treated as an
# accepted limitation of this service.

REPLY_PROMPT_TEMPLATE: str = """\
You are a helpful AI embedded in a chat app.
THE TIME NOW IS {now}
User's message: "{user_message}"
Respond in a friendly, clear, and concise manner.
Avoid fluff, directly respond to the user's request or inquiry with precision and clarity.
Keep the answer to 6-7 sentences.
"""

SUMMARY_PROMPT_TEMPLATE: str = """\
Summarize the following message in 4-5 sentences, keeping it clear and concise.
User's message: "{user_message}"
"""

EMAIL_PROMPT_TEMPLATE: str = """\
You are an AI email assistant embedded in an email client app.
THE TIME NOW IS {now}
User's request: "{user_message}"
Compose a formal and professional email reply, keeping it clear, polite, and actionable.
Do not add fluff like "Here is your email" or "Here is your response".
Keep the tone professional and helpful, in 6-7 sentences.
"""


@dataclass(frozen=True)
class PromptSet:
    reply: str
    summary: str
    email: Optional[str] = None


class PromptBuilder:
    """
    Builds the reply / summary / email prompts for one user message.
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self._clock = clock

    def now_text(self) -> str:
        return self._clock().strftime("%m/%d/%Y, %I:%M:%S %p")

    def reply(self, user_msg: str) -> str:
        return REPLY_PROMPT_TEMPLATE.format(now=self.now_text(), user_message=user_msg)

    def summary(self, user_msg: str) -> str:
        return SUMMARY_PROMPT_TEMPLATE.format(user_message=user_msg)

    def email(self, user_msg: str) -> str:
        return EMAIL_PROMPT_TEMPLATE.format(now=self.now_text(), user_message=user_msg)

    def build(self, user_msg: str, with_email: bool = False) -> PromptSet:
        return PromptSet(
            reply=self.reply(user_msg),
            summary=self.summary(user_msg),
            email=self.email(user_msg) if with_email else None,
        )
