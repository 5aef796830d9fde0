"""Procurement intake and tracking: proxy API, shared derivations and the Streamlit client."""
