"""Task board vertical — two-column Kanban with a streaming AI assistant.

Demonstrates the FlowBoard patterns working together in one domain:
- SQLAlchemy Task model with OwnedMixin
- Async repository + service with change notifications
- FastAPI router with a streaming chat relay
- Server-side create_task tool execution
- Client SDK with an incremental stream consumer
- Dataclass configuration
"""
