"""Output layer: Rich rendering, JSON, and quiet modes for ServiceResult."""
