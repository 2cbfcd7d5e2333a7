"""Book lending core package.

Modules:
- store: JSON document store with locked load/save transactions
- catalog: book records and categories
- ledger: borrow/return state machine and invariant checks
- queries: filtering of borrow records
- service: operation boundary used by the API and CLI
- credentials / sessions: password hashing and bearer tokens
- app: FastAPI app and server startup
- config: INI parsing and config object
"""
