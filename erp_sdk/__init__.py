# erp_sdk/__init__.py
# SDK для сервисов ERP: реестр ресурсов, доступ к данным и общий bulk CRUD движок.
