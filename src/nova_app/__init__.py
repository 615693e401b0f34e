"""Nova Defense HTTP host."""
