"""Built-in repository resolvers."""
