from fastapi import APIRouter, Depends, Request, Form, HTTPException, status
from fastapi.responses import HTMLResponse, RedirectResponse
from passlib.context import CryptContext
from psycopg import AsyncConnection

from db import getDB
from utils import templates

# --- 1. Router and password hashing ---
router = APIRouter()
_pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

MIN_PASSWORD_LENGTH = 6


def hash_password(password: str) -> str:
    return _pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    return _pwd_context.verify(plain_password, password_hash)


async def is_setup_complete(conn: AsyncConnection) -> bool:
    """The app is usable once the first (admin) account exists."""
    async with conn.cursor() as cur:
        await cur.execute("SELECT COUNT(*) AS count FROM users")
        row = await cur.fetchone()
    return row["count"] > 0


# --- 2. Current user ---
async def get_current_user(request: Request, conn: AsyncConnection = Depends(getDB)):
    """
    Reads the signed session cookie and returns the user row (dict), or None.

    A session pointing at a user id that no longer exists, or holding
    something that is not an id at all, is cleared.
    """
    user_id = request.session.get("user_id")
    if not user_id:
        return None

    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        request.session.clear()
        return None

    async with conn.cursor() as cur:
        await cur.execute("SELECT id, username, email, full_name FROM users WHERE id = %s", (user_id,))
        user = await cur.fetchone()

    if not user:
        request.session.clear()
        return None

    return user


async def get_current_admin_user(
    user: dict | None = Depends(get_current_user),
    conn: AsyncConnection = Depends(getDB),
) -> dict:
    """
    Guard for every management page.
    Not signed in -> /login, or /setup while no account exists yet.
    """
    if user is None:
        location = "/login" if await is_setup_complete(conn) else "/setup"
        raise HTTPException(
            status_code=status.HTTP_302_FOUND,
            detail="Not authenticated",
            headers={"Location": location},
        )
    return user


# --- 3. First-run setup ---
@router.get("/setup", response_class=HTMLResponse)
async def get_setup_page(request: Request, conn: AsyncConnection = Depends(getDB)):
    if await is_setup_complete(conn):
        return RedirectResponse(url="/login", status_code=status.HTTP_302_FOUND)
    return templates.TemplateResponse(request, "setup.html", {"request": request})


@router.post("/setup")
async def handle_setup(
    request: Request,
    username: str = Form(""),
    email: str = Form(""),
    full_name: str = Form(""),
    password: str = Form(""),
    confirm_password: str = Form(""),
    conn: AsyncConnection = Depends(getDB),
):
    """Creates the single administrator account."""
    if await is_setup_complete(conn):
        return RedirectResponse(url="/login", status_code=status.HTTP_303_SEE_OTHER)

    form = {"username": username.strip(), "email": email.strip(), "full_name": full_name.strip()}
    error = None
    if not all(form.values()) or not password:
        error = "Please fill in all fields."
    elif password != confirm_password:
        error = "Passwords do not match."
    elif len(password) < MIN_PASSWORD_LENGTH:
        error = f"Password must be at least {MIN_PASSWORD_LENGTH} characters."

    if error:
        return templates.TemplateResponse(request, "setup.html", {
            "request": request, "form": form, "error": error
        }, status_code=400)

    async with conn.cursor() as cur:
        await cur.execute(
            """
            INSERT INTO users (username, email, hashed_password, full_name, is_admin)
            VALUES (%s, %s, %s, %s, TRUE)
            """,
            (form["username"], form["email"], hash_password(password), form["full_name"])
        )
    print(f"Admin account created: {form['username']}")

    return RedirectResponse(url="/login?registered=true", status_code=status.HTTP_303_SEE_OTHER)


# --- 4. Login / logout ---
@router.get("/login", response_class=HTMLResponse)
async def get_login_page(
    request: Request,
    registered: bool = False,
    user: dict | None = Depends(get_current_user),
    conn: AsyncConnection = Depends(getDB),
):
    if user:
        return RedirectResponse(url="/", status_code=status.HTTP_302_FOUND)
    if not await is_setup_complete(conn):
        return RedirectResponse(url="/setup", status_code=status.HTTP_302_FOUND)

    context = {"request": request}
    if registered:
        context["message"] = "Account created. Please sign in."
    return templates.TemplateResponse(request, "login.html", context)


@router.post("/login")
async def handle_login(
    request: Request,
    username: str = Form(""),
    password: str = Form(""),
    conn: AsyncConnection = Depends(getDB),
):
    """Accepts the username or the e-mail address."""
    if not username.strip() or not password:
        return templates.TemplateResponse(request, "login.html", {
            "request": request, "error": "Username and password are required."
        }, status_code=400)

    async with conn.cursor() as cur:
        await cur.execute(
            "SELECT id, username, hashed_password FROM users WHERE username = %s OR email = %s",
            (username.strip(), username.strip())
        )
        user = await cur.fetchone()

    if not user or not verify_password(password, user["hashed_password"]):
        return templates.TemplateResponse(request, "login.html", {
            "request": request, "error": "Invalid username or password."
        }, status_code=401)

    request.session["user_id"] = user["id"]
    return RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)


@router.get("/logout")
async def handle_logout(request: Request):
    request.session.clear()
    return RedirectResponse(url="/login", status_code=status.HTTP_303_SEE_OTHER)
