"""Reference data used when no retrieval backend is configured."""
