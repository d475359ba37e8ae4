"""Meeting note finalisation worker."""
