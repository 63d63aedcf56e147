"""Application layer: DTOs and ports used by the API and infrastructure."""
