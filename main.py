from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from apscheduler.schedulers.background import BackgroundScheduler
from contextlib import asynccontextmanager
import logging

from app.config import settings
from app.database import engine, Base
from app.dependencies import limiter
from app.routes import checkout, leads, payments, webhooks
from app.services.event_logger import EmailValidationLogger
from app.services.notifications import EmailService, NotificationQueue
from app.services.payment_gateway import PaymentGateway
from app.models import Lead, Client  # noqa: F401  (enregistre les tables sur Base)

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)

# Composants uniques du process, injectés via app.dependencies
scheduler = BackgroundScheduler()
event_logger = EmailValidationLogger(
    metrics_threshold_ms=settings.PERFORMANCE_METRICS_THRESHOLD_MS,
    warning_threshold_ms=settings.PERFORMANCE_WARNING_THRESHOLD_MS,
)
gateway = PaymentGateway(
    settings.STRIPE_SECRET_KEY,
    settings.STRIPE_WEBHOOK_SECRET,
    tolerance=settings.WEBHOOK_TOLERANCE_SECONDS,
)
notifications = NotificationQueue(
    scheduler,
    EmailService(settings.RESEND_API_KEY, settings.EMAIL_FROM, settings.ADMIN_EMAIL),
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info("✅ Database tables created")
    scheduler.start()
    logger.info("✅ Notification scheduler started")
    yield
    scheduler.shutdown()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url=None,
)

app.state.limiter = limiter
app.state.event_logger = event_logger
app.state.gateway = gateway
app.state.notifications = notifications
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(GZipMiddleware, minimum_size=1000)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(checkout.router, tags=["checkout"])
app.include_router(leads.router,    tags=["leads"])
app.include_router(payments.router, tags=["payments"])
app.include_router(webhooks.router, tags=["webhooks"])


@app.get("/", include_in_schema=False)
def root():
    return {"status": "ok", "service": settings.APP_NAME}

@app.get("/health", include_in_schema=False)
def health():
    return {"status": "healthy"}
