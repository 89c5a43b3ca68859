"""
Services Layer

Pure reservation-engine logic that:
- Accepts domain inputs (IDs, sessions, timestamps)
- Returns domain outputs (models, dataclasses)
- Does NOT depend on HTTP request/response objects
- Raises services.errors.ReservationError subclasses on guard failures
"""
