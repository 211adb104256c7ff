import io
import logging
from datetime import timedelta
from typing import List, Optional

from fastapi import Depends, FastAPI, Header, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import qrcode

from config import Settings, configure_logging
from errors import (
    AlreadyExists, AlreadyFlagged, InvalidInput, InvalidState, NotFound, RegistryError, Unauthorized,
)
from events import ContaminationReported
from schemas import (
    ErrorBody, Participant, ProductBrief, ProductCreated, ProductList, ProductSafety,
    ProductSummary, RecallNotice, RegisterParticipant, RegisterProduct, TransferProduct,
)
from service import FoodTraceService, build_service

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = [
    (Unauthorized, 403),
    (NotFound, 404),
    (InvalidInput, 400),
    (AlreadyFlagged, 409),
    (AlreadyExists, 409),
    (InvalidState, 409),
]

def status_for(exc: RegistryError) -> int:
    for kind, status in STATUS_BY_ERROR:
        if isinstance(exc, kind):
            return status
    return 400

# ---------- Dependencies ----------
def get_service(request: Request) -> FoodTraceService:
    return request.app.state.service

def get_caller(x_caller_id: str = Header(..., description="identity of the calling participant")) -> str:
    return x_caller_id

# ---------- Event relays ----------
def _relay_to_log(event) -> None:
    logger.info("event %s %s", event.kind, event.model_dump_json(exclude={"kind"}))

def _recall_relay(service: FoodTraceService, recalls: List[RecallNotice]):
    def on_contamination(event: ContaminationReported) -> None:
        product = service.get_product(event.product_id)
        recalls.append(RecallNotice(
            product_id=product.product_id,
            product_name=product.name,
            reporter=event.reporter,
            current_owner=product.current_owner,
            current_location=product.current_location,
            reported_at=event.occurred_at,
        ))
    return on_contamination

def create_app(settings: Optional[Settings] = None, service: Optional[FoodTraceService] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)
    service = service or build_service(settings)

    app = FastAPI(title="Food Trace Registry", version="0.2.0")
    app.state.settings = settings
    app.state.service = service
    app.state.recalls = []

    service.subscribe(_relay_to_log)
    service.subscribe(_recall_relay(service, app.state.recalls), kind="ContaminationReported")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RegistryError)
    async def registry_error(request: Request, exc: RegistryError):
        body = ErrorBody(error=exc.kind, detail=exc.reason)
        return JSONResponse(status_code=status_for(exc), content=body.model_dump())

    # ---------- Participants ----------
    @app.post("/api/participants", response_model=Participant, status_code=201)
    def register_participant(body: RegisterParticipant, caller: str = Depends(get_caller),
                             svc: FoodTraceService = Depends(get_service)):
        return svc.register_participant(caller, body.identity, body.name, body.role)

    @app.get("/api/participants/{identity}", response_model=Participant)
    def get_participant(identity: str, svc: FoodTraceService = Depends(get_service)):
        return svc.get_participant(identity)

    # ---------- Products ----------
    @app.post("/api/products", response_model=ProductCreated, status_code=201)
    def register_product(body: RegisterProduct, caller: str = Depends(get_caller),
                         svc: FoodTraceService = Depends(get_service)):
        product_id = svc.register_product(caller, body.name, body.origin, body.expiry_date)
        return ProductCreated(product_id=product_id)

    @app.get("/api/products", response_model=ProductList)
    def list_products(
        q: Optional[str] = Query(None, description="search by name, origin or farmer"),
        page: int = Query(1, ge=1),
        page_size: int = Query(10, ge=1, le=100),
        svc: FoodTraceService = Depends(get_service),
    ):
        rows, total = svc.list_products(q, page, page_size)
        items = [ProductBrief(
            product_id=p.product_id,
            name=p.name,
            origin=p.origin,
            current_owner=p.current_owner,
            is_contaminated=p.is_contaminated,
        ) for p in rows]
        return ProductList(items=items, total=total, page=page, page_size=page_size)

    @app.get("/api/products/{product_id}", response_model=ProductSummary)
    def get_product(product_id: int, svc: FoodTraceService = Depends(get_service)):
        return ProductSummary(
            product=svc.get_product(product_id),
            safe=svc.is_product_safe(product_id),
            history=svc.get_product_history(product_id),
            owners=svc.get_ownership_history(product_id),
            label_url=f"{settings.base_url}/product.html?product_id={product_id}",
        )

    @app.post("/api/products/{product_id}/transfer", response_model=ProductBrief)
    def transfer_product(product_id: int, body: TransferProduct, caller: str = Depends(get_caller),
                         svc: FoodTraceService = Depends(get_service)):
        p = svc.transfer_product(caller, product_id, body.new_owner, body.new_location)
        return ProductBrief(product_id=p.product_id, name=p.name, origin=p.origin,
                            current_owner=p.current_owner, is_contaminated=p.is_contaminated)

    @app.post("/api/products/{product_id}/contamination", response_model=ProductBrief)
    def report_contamination(product_id: int, caller: str = Depends(get_caller),
                             svc: FoodTraceService = Depends(get_service)):
        p = svc.report_contamination(caller, product_id)
        return ProductBrief(product_id=p.product_id, name=p.name, origin=p.origin,
                            current_owner=p.current_owner, is_contaminated=p.is_contaminated)

    @app.get("/api/products/{product_id}/history", response_model=List[str])
    def product_history(product_id: int, svc: FoodTraceService = Depends(get_service)):
        return svc.get_product_history(product_id)

    @app.get("/api/products/{product_id}/owners", response_model=List[str])
    def ownership_history(product_id: int, svc: FoodTraceService = Depends(get_service)):
        return svc.get_ownership_history(product_id)

    @app.get("/api/products/{product_id}/safety", response_model=ProductSafety)
    def product_safety(product_id: int, svc: FoodTraceService = Depends(get_service)):
        product = svc.get_product(product_id)
        now = svc.ctx.now()
        return ProductSafety(
            product_id=product_id,
            safe=svc.is_product_safe(product_id, now),
            is_contaminated=product.is_contaminated,
            expired=svc.guard.is_expired(product, now),
        )

    @app.get("/api/products/{product_id}/qrcode")
    def product_qrcode(product_id: int, svc: FoodTraceService = Depends(get_service)):
        svc.get_product(product_id)
        url = f"{settings.base_url}/product.html?product_id={product_id}"
        img = qrcode.make(url)
        buf = io.BytesIO()
        img.save(buf, format="PNG")
        return Response(content=buf.getvalue(), media_type="image/png")

    # ---------- Recalls ----------
    @app.get("/api/recalls", response_model=List[RecallNotice])
    def list_recalls(request: Request):
        return list(request.app.state.recalls)

    # ---------- Demo data ----------
    @app.post("/api/seed")
    def seed(caller: str = Depends(get_caller), svc: FoodTraceService = Depends(get_service)):
        svc.access.require_admin(caller)
        if svc.list_products(page_size=1)[1]:
            return {"status": "exists", "products": svc.registry.product_count()}

        people = [
            ("farm-maerim", "Baan Mae Rim Farm", "farmer"),
            ("cm-packhouse", "Chiang Mai Packhouse", "processor"),
            ("north-cold", "Northern Cold Chain", "distributor"),
            ("fresh-mart", "Fresh Mart Nimman", "retailer"),
        ]
        taken = [identity for identity, _, _ in people if svc.is_verified(identity)]
        if taken:
            # each step below commits on its own, so refuse before the first one
            raise AlreadyExists(f"seed participants already registered: {', '.join(taken)}")
        for identity, name, role in people:
            svc.register_participant(caller, identity, name, role)

        expiry = svc.ctx.now() + timedelta(days=14)
        lettuce = svc.register_product("farm-maerim", "Hydro Lettuce", "Mae Rim, Chiang Mai", expiry)
        svc.transfer_product("farm-maerim", lettuce, "cm-packhouse", "Cold Room #1")
        svc.transfer_product("cm-packhouse", lettuce, "north-cold", "Cold Truck A")
        kale = svc.register_product("farm-maerim", "Kale", "Mae Rim, Chiang Mai", expiry)
        return {"status": "seeded", "products": [lettuce, kale]}

    return app

app = create_app()
