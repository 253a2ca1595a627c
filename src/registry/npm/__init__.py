"""npm registry client and lockfile recorder."""
