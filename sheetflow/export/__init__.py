"""CSV/XLSX serialization of item batches."""
