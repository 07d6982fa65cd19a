from parley.infrastructure.providers.langchain_provider import (
    LangChainProvider, from_langchain_message, to_langchain_messages
)

__all__ = ["LangChainProvider", "from_langchain_message", "to_langchain_messages"]
