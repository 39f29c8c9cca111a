"""Users module - accounts and global user types."""
