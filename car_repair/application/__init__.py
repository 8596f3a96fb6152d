"""Application services orchestrating CRUD and core components."""
