"""
pytest suite for the USDC Credits backend.

Test categories:
- Unit tests: amounts, payment methods, dispatcher, purchase session, Circle client
- API tests: full FastAPI app with in-memory SQLite and a fake Circle client
- Edge case tests: idempotent recording, double submit, persistence failures
"""
