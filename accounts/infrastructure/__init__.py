"""Infrastructure layer: document stores, repositories, security, email."""
