"""Tubely: video hosting backend with fast-start ingest and signed playback URLs."""
