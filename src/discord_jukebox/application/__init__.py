"""
Application Layer

Orchestrates domain objects and infrastructure to fulfil use cases.

Structure:
- services/: Track resolution and the playback engine
- interfaces/: Port interfaces for infrastructure adapters
"""
