#!/usr/bin/env python3
"""
Briefcast FastAPI Server

A job-based audio brief generation server. Accepts per-user generation
jobs, runs the content -> script -> audio -> upload pipeline in the
background and exposes status polling, history and cancellation.
"""
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from starlette.staticfiles import StaticFiles

from briefcast.config import APP_NAME, APP_VERSION, AUDIO_DIR, SERVER_HOST, SERVER_PORT, ensure_directories
from briefcast.database import init_db, close_db
from briefcast.services.dispatcher import get_job_dispatcher
from briefcast.routers import health_router, jobs_router, users_router, cron_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Startup:
        - Initialize database and create tables
        - Start job dispatcher
        - Resubmit jobs left unfinished by the previous run

    Shutdown:
        - Stop job dispatcher
        - Close HTTP clients
        - Close database connections
    """
    print(f'Starting {APP_NAME} v{APP_VERSION}...')

    # Initialize database
    print('Initializing database...')
    await init_db()

    # Start job dispatcher
    print('Starting job dispatcher...')
    dispatcher = get_job_dispatcher()
    await dispatcher.start()

    recovered = await dispatcher.recover()
    if recovered:
        print(f'Resubmitted {recovered} unfinished jobs')

    print(f'Server ready at http://{SERVER_HOST}:{SERVER_PORT}')
    print('API documentation available at /docs')

    yield

    # Shutdown
    print('Shutting down...')

    await dispatcher.stop()
    await dispatcher.services.aclose()

    # Close database
    await close_db()

    print('Shutdown complete.')


# Create FastAPI application
app = FastAPI(
    title=APP_NAME,
    description='A job-based audio brief generation server.',
    version=APP_VERSION,
    lifespan=lifespan,
)

# Register routers
app.include_router(health_router)
app.include_router(jobs_router)
app.include_router(users_router)
app.include_router(cron_router)

# Serve locally stored audio
ensure_directories()
app.mount('/audio', StaticFiles(directory=str(AUDIO_DIR)), name='audio')


if __name__ == '__main__':
    uvicorn.run(
        app,
        host=SERVER_HOST,
        port=SERVER_PORT,
        reload=False,
        log_level='info',
    )
