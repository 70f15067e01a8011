"""Domain layer: secure links, file storage, errors and events."""
