"""askai - turn natural language into shell commands.

Generation goes through a provider (a CLI such as gemini/claude/codex, or an
LLM API through LangChain). Results are memoized in a response cache, and
commands can be fanned out across many projects with the batch executor.
A background daemon keeps providers and the cache resident for fast replies.
"""

__version__ = "0.3.0"
