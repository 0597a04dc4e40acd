"""Series consolidation domain: titles, similarity, relations, naming and entities."""
