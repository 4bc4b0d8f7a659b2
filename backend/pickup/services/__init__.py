"""
Services Layer

Business logic that:
- Accepts domain inputs (IDs, sessions)
- Returns domain outputs (models) or raises domain errors
- Does NOT depend on HTTP request/response objects
"""
