
from typing import Any

from langchain_core.output_parsers import StrOutputParser


class ResponseParser(StrOutputParser):
    """Very thin wrapper; pulls plain text out of whatever the chat model returned."""

    def parse_reply(self, reply: Any) -> str:
        content = getattr(reply, "content", reply)
        if isinstance(content, list):
            # Gemini may hand back a list of content parts
            content = "".join(
                part.get("text", "") if isinstance(part, dict) else str(part)
                for part in content
            )
        if not isinstance(content, str):
            content = str(content)
        return self.parse(content).strip()
