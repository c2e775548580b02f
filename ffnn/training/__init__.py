"""Cost functions, evaluation metrics and config-driven training pipelines."""
