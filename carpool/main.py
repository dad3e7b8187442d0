from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import database
from .errors import CallableError, callable_error_handler
from .routes import functions

app = FastAPI(title="Carpool Automation API")
app.include_router(functions.router)
app.add_exception_handler(CallableError, callable_error_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.on_event("startup")
def startup_event():
    engine = database.init_engine()
    database.init_db(engine)
