"""Aviary owners: email sign-in, JWT tokens and display preferences."""
