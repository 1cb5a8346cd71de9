"""accounts: user accounts, authentication and role-based access over a document store."""
