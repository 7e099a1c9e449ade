"""
Stock Modules.

Domain modules built on the Stock Kernel.  Each module contains:
- Domain models (the nouns and the aggregate rules)
- Workflows (state machines)
- Configuration schemas
- ORM models, repository and application service

Modules:
- Transfers: stock movements between locations, from draft to receipt
"""
