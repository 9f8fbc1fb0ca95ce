"""Aviary records: birds, cages, pairs, breeding records, notes, transactions and permits."""
