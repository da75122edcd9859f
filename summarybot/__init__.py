"""FastAPI chat service: AI reply + summary (+ optional email), paginated history."""
