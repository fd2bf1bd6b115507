"""nanuri portal proxy: session, search and stream resolution."""
