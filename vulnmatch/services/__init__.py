"""Service layer — business logic orchestration."""
