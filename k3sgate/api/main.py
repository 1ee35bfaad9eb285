from fastapi import FastAPI
from dotenv import load_dotenv

from k3sgate.api.middleware import AuthMiddleware
from k3sgate.api.routes import gates

load_dotenv()
app = FastAPI(title="k3sgate", description="Readiness gates for K3s clusters on KVM")
app.add_middleware(AuthMiddleware)

app.include_router(gates.router)
