# dashboard/main.py
import os
import logging
from pathlib import Path
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, FastAPI, UploadFile, File, Depends, HTTPException, Request, Form
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates
from fastapi.staticfiles import StaticFiles
from sqlalchemy.orm import Session

from . import actions, auth, data, db, utils
from .actions import CUSTOMERS_PATH, INVOICES_PATH, OVERVIEW_PATH
from .cache import PageCache
from .schemas import ActionResult, FormState, ImageFile, PageQuery
from .storage import ImageStorage

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

# --- Directories ---
BASE_DIR = Path(__file__).resolve().parent
UPLOAD_DIR = Path(os.getenv("UPLOAD_DIR", "./uploads"))
UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
CACHE_DIR = Path(os.getenv("CACHE_DIR", "./.cache/pages"))

# --- FastAPI app ---
app = FastAPI(title="Acme Dashboard")

templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))
templates.env.filters["currency"] = utils.format_currency
templates.env.filters["display_date"] = utils.format_date
templates.env.globals["generate_pagination"] = utils.generate_pagination

# uploaded customer images are served from the paths ImageStorage hands out
app.mount("/customers", StaticFiles(directory=str(UPLOAD_DIR)), name="customer-images")

page_cache = PageCache(CACHE_DIR)
image_storage = ImageStorage(UPLOAD_DIR, public_prefix="/customers")

# Create tables if they do not exist yet
db.init_db()

# DB session dependency
def get_db():
    session = db.SessionLocal()
    try:
        yield session
    finally:
        session.close()


def get_storage() -> ImageStorage:
    return image_storage


def apply_effects(result: ActionResult) -> None:
    for path in result.revalidate:
        page_cache.revalidate(path)


def redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=303)


@app.exception_handler(auth.LoginRequired)
async def login_required_handler(request: Request, exc: auth.LoginRequired):
    return redirect("/login?" + urlencode({"callbackUrl": exc.next_path}))


@app.get("/")
def home():
    return redirect(OVERVIEW_PATH)


# ----------------------------
# Login
# ----------------------------
@app.get("/login")
def login_form(request: Request, callbackUrl: Optional[str] = None):
    if auth.session_user_id(request.cookies.get(auth.SESSION_COOKIE)):
        return redirect(OVERVIEW_PATH)
    return templates.TemplateResponse(
        request, "login.html", {"state": FormState(), "redirect_to": callbackUrl or OVERVIEW_PATH}
    )


@app.post("/login")
def login(
    request: Request,
    email: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    redirectTo: Optional[str] = Form(None),
    db_session: Session = Depends(get_db),
):
    result = actions.authenticate(
        db_session, None, {"email": email, "password": password, "redirectTo": redirectTo}
    )
    if result.state:
        return templates.TemplateResponse(
            request,
            "login.html",
            {"state": result.state, "redirect_to": redirectTo or OVERVIEW_PATH, "email": email},
            status_code=400,
        )
    response = redirect(result.redirect)
    response.set_cookie(auth.SESSION_COOKIE, result.session_token, httponly=True, samesite="lax")
    return response


@app.post("/logout")
def logout():
    response = redirect("/login")
    response.delete_cookie(auth.SESSION_COOKIE)
    return response


# ----------------------------
# Dashboard pages (login required)
# ----------------------------
dashboard = APIRouter(prefix=OVERVIEW_PATH, dependencies=[Depends(auth.require_user)])


@dashboard.get("")
def overview(request: Request, db_session: Session = Depends(get_db)):
    cards = page_cache.get_or_load(OVERVIEW_PATH, "cards", lambda: data.fetch_card_data(db_session))
    latest = page_cache.get_or_load(OVERVIEW_PATH, "latest", lambda: data.fetch_latest_invoices(db_session))
    return templates.TemplateResponse(request, "overview.html", {"cards": cards, "latest": latest})


def render_invoices(
    request: Request,
    db_session: Session,
    page_query: PageQuery,
    state: Optional[FormState] = None,
    status_code: int = 200,
):
    q = page_query
    invoices = page_cache.get_or_load(
        INVOICES_PATH, f"list:{q.page}:{q.query}", lambda: data.fetch_filtered_invoices(db_session, q.query, q.page)
    )
    total_pages = page_cache.get_or_load(
        INVOICES_PATH, f"pages:{q.query}", lambda: data.fetch_invoices_pages(db_session, q.query)
    )
    return templates.TemplateResponse(
        request,
        "invoices/list.html",
        {"invoices": invoices, "page_query": q, "total_pages": total_pages, "state": state or FormState()},
        status_code=status_code,
    )


def customer_options(db_session: Session):
    # the select lists customers, so it goes stale with the customers page
    return page_cache.get_or_load(CUSTOMERS_PATH, "options", lambda: data.fetch_customers(db_session))


@dashboard.get("/invoices")
def invoices_page(
    request: Request,
    query: Optional[str] = None,
    page: Optional[str] = None,
    db_session: Session = Depends(get_db),
):
    return render_invoices(request, db_session, PageQuery.from_params(query, page))


@dashboard.get("/invoices/create")
def create_invoice_form(request: Request, db_session: Session = Depends(get_db)):
    return templates.TemplateResponse(
        request,
        "invoices/create.html",
        {"customers": customer_options(db_session), "state": FormState(), "values": {}},
    )


@dashboard.post("/invoices/create")
def create_invoice(
    request: Request,
    customerId: Optional[str] = Form(None),
    amount: Optional[str] = Form(None),
    status: Optional[str] = Form(None),
    db_session: Session = Depends(get_db),
):
    form = {"customerId": customerId, "amount": amount, "status": status}
    result = actions.create_invoice(db_session, None, form)
    apply_effects(result)
    if result.redirect:
        return redirect(result.redirect)
    return templates.TemplateResponse(
        request,
        "invoices/create.html",
        {"customers": customer_options(db_session), "state": result.state, "values": form},
        status_code=400,
    )


@dashboard.get("/invoices/{invoice_id}/edit")
def edit_invoice_form(request: Request, invoice_id: str, db_session: Session = Depends(get_db)):
    invoice = data.fetch_invoice_by_id(db_session, invoice_id)
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")
    values = {"customerId": invoice.customer_id, "amount": invoice.amount, "status": invoice.status}
    return templates.TemplateResponse(
        request,
        "invoices/edit.html",
        {"invoice_id": invoice_id, "customers": customer_options(db_session), "state": FormState(), "values": values},
    )


@dashboard.post("/invoices/{invoice_id}/edit")
def update_invoice(
    request: Request,
    invoice_id: str,
    customerId: Optional[str] = Form(None),
    amount: Optional[str] = Form(None),
    status: Optional[str] = Form(None),
    db_session: Session = Depends(get_db),
):
    form = {"customerId": customerId, "amount": amount, "status": status}
    result = actions.update_invoice(db_session, invoice_id, form)
    apply_effects(result)
    if result.redirect:
        return redirect(result.redirect)
    return templates.TemplateResponse(
        request,
        "invoices/edit.html",
        {"invoice_id": invoice_id, "customers": customer_options(db_session), "state": result.state, "values": form},
        status_code=400,
    )


@dashboard.post("/invoices/{invoice_id}/delete")
def delete_invoice(
    request: Request,
    invoice_id: str,
    query: Optional[str] = Form(None),
    page: Optional[str] = Form(None),
    db_session: Session = Depends(get_db),
):
    result = actions.delete_invoice(db_session, invoice_id)
    apply_effects(result)
    return render_invoices(
        request,
        db_session,
        PageQuery.from_params(query, page),
        state=result.state,
        status_code=400 if result.state else 200,
    )


@dashboard.get("/customers")
def customers_page(
    request: Request,
    query: Optional[str] = None,
    page: Optional[str] = None,
    db_session: Session = Depends(get_db),
):
    q = PageQuery.from_params(query, page)
    customers = page_cache.get_or_load(
        CUSTOMERS_PATH, f"list:{q.page}:{q.query}", lambda: data.fetch_filtered_customers(db_session, q.query, q.page)
    )
    total_pages = page_cache.get_or_load(
        CUSTOMERS_PATH, f"pages:{q.query}", lambda: data.fetch_customers_pages(db_session, q.query)
    )
    return templates.TemplateResponse(
        request,
        "customers/list.html",
        {"customers": customers, "page_query": q, "total_pages": total_pages},
    )


@dashboard.get("/customers/create")
def create_customer_form(request: Request):
    return templates.TemplateResponse(request, "customers/create.html", {"state": FormState(), "values": {}})


@dashboard.post("/customers/create")
def create_customer(
    request: Request,
    name: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    image_url: Optional[UploadFile] = File(None),
    db_session: Session = Depends(get_db),
    storage: ImageStorage = Depends(get_storage),
):
    image = None
    if image_url is not None:
        image = ImageFile(
            filename=image_url.filename or "",
            content_type=image_url.content_type or "",
            content=image_url.file.read(),
        )
    form = {"name": name, "email": email, "image_url": image}
    result = actions.create_customer(db_session, None, form, storage)
    apply_effects(result)
    if result.redirect:
        return redirect(result.redirect)
    return templates.TemplateResponse(
        request,
        "customers/create.html",
        {"state": result.state, "values": {"name": name, "email": email}},
        status_code=400,
    )


app.include_router(dashboard)
