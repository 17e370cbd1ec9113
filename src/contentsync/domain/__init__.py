"""Domain layer: content model, conditions, ports and the importation pipeline."""
