import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException


# --- 1. Our modules ---
# config must be imported first: it loads .env / .env.test and sets up logging
import config
from database import Database
from auth import router as auth_router
from routers.vendors import router as vendors_router
from routers.products import router as products_router


logger = logging.getLogger(__name__)


# --- 2. Application lifespan ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Opens the store handle at startup and closes it at shutdown."""
    app.state.db = Database()
    if config.JWT_EXPIRE_MINUTES is None:
        logger.warning('JWT_EXPIRE_MINUTES is not set: issued tokens never expire')

    if not config.TESTING:
        await app.state.db.connect()
    else:
        logger.info('TESTING mode: skipping DB connect')

    yield

    await app.state.db.close()


# --- 3. Create and configure the application ---
app = FastAPI(
    title='Inventory API',
    description="Users, vendors and products with bearer-token authentication.",
    version='1.0.0',
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
)


# --- 4. Error bodies ---
# Every error leaves the API as {"error": "<message>"}
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={'error': exc.detail}, headers=exc.headers)


# Bodies or path params of the wrong type are client errors, not 422
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info('Invalid request to %s: %s', request.url.path, exc.errors())
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={'error': 'Invalid request body'})


# --- 5. Routers ---
app.include_router(auth_router)
app.include_router(vendors_router)
app.include_router(products_router)


@app.get('/', tags=['Root'])
def read_root():
    """Simple endpoint to check the API is up."""
    return {'status': 'API is running'}


if __name__ == '__main__':
    uvicorn.run(app, host='0.0.0.0', port=config.PORT)
