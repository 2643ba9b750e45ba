import celery_app  # noqa: F401  binds shared tasks to the project Celery app
