"""monoship: ship a monorepo project and its dependencies to another repo."""
