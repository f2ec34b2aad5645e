from ytoai.model import Usage
from ytoai.schema import Usage as ApiUsage


class YtoAiUsage(Usage):
    """:class:`Usage` backed by the token counts the API reports."""

    def __init__(self, usage: ApiUsage):
        if usage is None:
            raise ValueError("YtoAI usage must not be None")
        self.usage = usage

    @classmethod
    def from_usage(cls, usage: ApiUsage) -> "YtoAiUsage":
        return cls(usage)

    @property
    def prompt_tokens(self) -> int:
        return self.usage.prompt_tokens

    @property
    def generation_tokens(self) -> int:
        return self.usage.completion_tokens

    @property
    def total_tokens(self) -> int:
        return self.usage.total_tokens

    def __repr__(self) -> str:
        return f"YtoAiUsage({self.usage!r})"
