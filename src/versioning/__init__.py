"""Version parsing, coercion and resolution."""
