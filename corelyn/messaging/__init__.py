"""Response pipeline -- commands, Markdown rendering, streaming and feedback."""

__all__ = [
    "ClientBridge",
    "CommandDispatcher",
    "EventQueueBridge",
    "ExchangeResult",
    "MessageProcessor",
    "StreamRenderer",
    "markdown_to_html",
    "process_commands",
]
