#!/usr/bin/env python3
"""
Запуск бэкенда (API + страницы фронтенда).

Использование:
    python run_api.py

Адрес задаётся через API_HOST / API_PORT (по умолчанию http://0.0.0.0:8000)
"""

import uvicorn

from config.settings import API_HOST, API_PORT, LOG_LEVEL

if __name__ == "__main__":
    uvicorn.run(
        "api:app",
        host=API_HOST,
        port=API_PORT,
        reload=False,
        log_level=LOG_LEVEL.lower(),
    )
