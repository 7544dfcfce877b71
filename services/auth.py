from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import or_
from models.user import User, UserRole
from schemas.user import TokenData, UserRegister
from core.config import settings
from core.exceptions import BusinessLogicError
import logging

logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ALGORITHM = "HS256"
TOKEN_ISSUER = "qiogems"

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed JWT access token."""
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))

    to_encode.update({
        "exp": expire,
        "iat": datetime.utcnow(),
        "iss": TOKEN_ISSUER,
        "type": "access"
    })

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)

def create_token_for_user(user: User) -> str:
    return create_access_token({
        "sub": user.email,
        "user_id": str(user.id),
        "role": user.role.value
    })

def verify_token(token: str) -> Optional[TokenData]:
    """Decode a JWT; returns None for anything that is not a valid access token."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM], issuer=TOKEN_ISSUER)
    except JWTError as e:
        logger.warning(f"JWT verification failed: {str(e)}")
        return None

    email = payload.get("sub")
    user_id = payload.get("user_id")
    if email is None or user_id is None or payload.get("type") != "access":
        logger.warning("Token missing required claims")
        return None

    return TokenData(email=email, user_id=user_id)

def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email.lower().strip()).first()

def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """Authenticate a user with email and password."""
    user = get_user_by_email(db, email)
    if not user:
        logger.warning(f"Authentication attempt with non-existent email: {email}")
        return None

    if not user.is_active:
        logger.warning(f"Authentication attempt with inactive user: {email}")
        return None

    if not verify_password(password, user.password_hash):
        logger.warning(f"Authentication attempt with invalid password for user: {email}")
        return None

    logger.info(f"Successful authentication for user: {email}")
    return user

def create_user(db: Session, user_data: UserRegister, role: UserRole = UserRole.CUSTOMER) -> User:
    """Register a new account; storefront sign-ups are always customers."""
    email = user_data.email.lower().strip()

    existing_user = db.query(User).filter(
        or_(User.email == email, User.username == user_data.username)
    ).first()
    if existing_user:
        logger.warning(f"Attempt to create user with existing email or username: {email}")
        raise BusinessLogicError("User with this email or username already exists")

    db_user = User(
        username=user_data.username,
        email=email,
        password_hash=get_password_hash(user_data.password),
        first_name=user_data.first_name,
        last_name=user_data.last_name,
        phone=user_data.phone,
        address=user_data.address,
        city=user_data.city,
        country=user_data.country,
        zip_code=user_data.zip_code,
        role=role,
        is_active=True
    )

    try:
        db.add(db_user)
        db.commit()
        db.refresh(db_user)
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Database integrity error creating user {email}: {str(e)}")
        raise BusinessLogicError("User with this email or username already exists")
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error creating user {email}: {str(e)}")
        raise

    logger.info(f"User created successfully: {email} with role {role.value}")
    return db_user
