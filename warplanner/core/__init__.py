"""Core domain: pure scoring functions, ports and orchestration services."""
