"""Storage adapter layer — Pluggable connectors for query backends.

Built-in adapters:
  - elasticsearch: Elasticsearch v8+ (query DSL, delete-by-query)
  - opensearch: OpenSearch v2+ (AWS-compatible Elasticsearch fork, same DSL)
  - mongodb: MongoDB via Motor (query documents, cursors)

Implement ``StorageAdapter`` to connect your own backend.
"""
