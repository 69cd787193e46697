import uvicorn
from dotenv import load_dotenv
from app.config.settings import ProxySettings
from app.core.proxy_router import ProxyRouter
from app.core.trace import TraceMiddleware
from app.core.cors import CORSMiddleware
from app.core.logging_setup import configure_logging

# Load environment variables from .env file
load_dotenv()
settings = ProxySettings.from_env()
configure_logging(settings.log_level)

proxy = ProxyRouter(settings)

app = TraceMiddleware(proxy)
app = CORSMiddleware(app)

if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.port)
