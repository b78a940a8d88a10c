"""Application services: SCA orchestration and request security checks."""
