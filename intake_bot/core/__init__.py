"""Record models and the JSON collection store."""
