"""Authentication API endpoints."""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
import structlog

from aitwy.api.dependencies import (
    get_auth_service,
    get_current_user,
    get_email_service,
    get_user_service,
)
from aitwy.models.auth import (
    LoginData,
    LoginRequest,
    LoginUser,
    ProfileData,
    ProfileUser,
    ResendVerificationRequest,
    SignupData,
    SignupRequest,
    SignupUser,
    VerifiedData,
    VerifiedUser,
)
from aitwy.models.response import error_response, success_response
from aitwy.models.user import User
from aitwy.services.auth_service import AuthService, hash_token
from aitwy.services.email_service import EmailDeliveryError, EmailService
from aitwy.services.user_service import DuplicateEmailError, UserService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])

INVALID_CREDENTIALS = "Invalid email or password"


def _json(status_code: int, content: dict) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=content)


def _server_error(event: str, message: str, exc: Exception) -> JSONResponse:
    """Log an unexpected failure and shape it as a 500 envelope."""
    logger.error(event, error=str(exc), exc_info=True)
    return _json(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_response(message, error=str(exc)),
    )


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(
    request: SignupRequest,
    user_service: UserService = Depends(get_user_service),
    auth_service: AuthService = Depends(get_auth_service),
    email_service: EmailService = Depends(get_email_service),
) -> JSONResponse:
    """Register a new account.

    The account starts unverified and inactive. A verification email is
    attempted; if it cannot be sent the signup still succeeds and the user
    can request a resend.
    """
    try:
        if await user_service.get_by_email(request.email) is not None:
            return _json(
                status.HTTP_400_BAD_REQUEST,
                error_response("User with this email already exists"),
            )

        try:
            user = await user_service.create_user(
                name=request.name,
                email=request.email,
                password=request.password,
            )
        except DuplicateEmailError:
            return _json(
                status.HTTP_400_BAD_REQUEST,
                error_response("User with this email already exists"),
            )

        token = auth_service.generate_verification_token()
        await user_service.set_verification_token(user.id, token)

        try:
            await email_service.send_verification_email(user, token.raw)
        except EmailDeliveryError as e:
            logger.warning("signup_verification_email_skipped", user_id=str(user.id), error=str(e))

        logger.info("user_signed_up", user_id=str(user.id))

        data = SignupData(
            user=SignupUser(
                id=user.id,
                name=user.name,
                email=user.email,
                is_email_verified=user.is_email_verified,
                created_at=user.created_at,
            ),
            requires_verification=True,
        )
        return _json(
            status.HTTP_201_CREATED,
            success_response(
                "Registration successful! Please check your email to verify your account.",
                data,
            ),
        )
    except Exception as e:
        return _server_error("signup_failed", "Error creating user account", e)


@router.post("/login")
async def login(
    request: LoginRequest,
    user_service: UserService = Depends(get_user_service),
    auth_service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    """Login with email and password.

    Verification and activation are checked before the password compare.
    """
    try:
        record = await user_service.get_by_email(request.email)

        if record is None:
            return _json(status.HTTP_401_UNAUTHORIZED, error_response(INVALID_CREDENTIALS))

        if not record.is_email_verified:
            return _json(
                status.HTTP_401_UNAUTHORIZED,
                error_response(
                    "Please verify your email address before logging in. "
                    "Check your inbox for the verification link.",
                    requires_verification=True,
                ),
            )

        if not record.is_active:
            return _json(
                status.HTTP_401_UNAUTHORIZED,
                error_response("Your account has been deactivated. Please contact support."),
            )

        if not auth_service.verify_password(request.password, record.password_hash):
            return _json(status.HTTP_401_UNAUTHORIZED, error_response(INVALID_CREDENTIALS))

        token = auth_service.create_access_token(str(record.id))
        last_login = await user_service.record_login(record.id)

        logger.info("user_logged_in", user_id=str(record.id))

        data = LoginData(
            user=LoginUser(
                id=record.id,
                name=record.name,
                email=record.email,
                last_login=last_login,
            ),
            token=token,
        )
        return _json(status.HTTP_200_OK, success_response("Login successful", data))
    except Exception as e:
        return _server_error("login_failed", "Error logging in", e)


@router.get("/me")
async def get_me(current_user: User = Depends(get_current_user)) -> JSONResponse:
    """Get the account identified by the bearer token."""
    try:
        data = ProfileData(
            user=ProfileUser(
                id=current_user.id,
                name=current_user.name,
                email=current_user.email,
                created_at=current_user.created_at,
                last_login=current_user.last_login,
            )
        )
        return _json(status.HTTP_200_OK, success_response(data=data))
    except Exception as e:
        return _server_error("get_user_failed", "Error fetching user data", e)


@router.post("/logout")
async def logout(current_user: User = Depends(get_current_user)) -> JSONResponse:
    """Logout (stateless).

    Bearer tokens are not revoked server-side; the client discards its copy.
    """
    logger.info("user_logged_out", user_id=str(current_user.id))
    return _json(status.HTTP_200_OK, success_response("Logged out successfully"))


@router.get("/verify-email/{token}")
async def verify_email(
    token: str,
    user_service: UserService = Depends(get_user_service),
    email_service: EmailService = Depends(get_email_service),
) -> JSONResponse:
    """Verify an email address with the emailed token and activate the account."""
    try:
        verified = await user_service.verify_email_token(hash_token(token))
        if verified is None:
            return _json(
                status.HTTP_400_BAD_REQUEST,
                error_response(
                    "Invalid or expired verification token. "
                    "Please request a new verification email."
                ),
            )

        await email_service.send_welcome_email(verified)

        data = VerifiedData(
            user=VerifiedUser(
                id=verified.id,
                name=verified.name,
                email=verified.email,
                is_email_verified=verified.is_email_verified,
            )
        )
        return _json(
            status.HTTP_200_OK,
            success_response(
                "Email verified successfully! You can now log in to your account.",
                data,
            ),
        )
    except Exception as e:
        return _server_error("email_verification_failed", "Error verifying email", e)


@router.post("/resend-verification")
async def resend_verification(
    request: ResendVerificationRequest,
    user_service: UserService = Depends(get_user_service),
    auth_service: AuthService = Depends(get_auth_service),
    email_service: EmailService = Depends(get_email_service),
) -> JSONResponse:
    """Issue a fresh verification token and email it.

    Unknown emails get the same generic success answer; already-verified
    accounts are told so.
    """
    try:
        record = await user_service.get_by_email(request.email)

        if record is None:
            return _json(
                status.HTTP_200_OK,
                success_response(
                    "If an account with that email exists and is not verified, "
                    "a verification email has been sent."
                ),
            )

        if record.is_email_verified:
            return _json(
                status.HTTP_400_BAD_REQUEST,
                error_response(
                    "This email address is already verified. You can log in to your account."
                ),
            )

        token = auth_service.generate_verification_token()
        await user_service.set_verification_token(record.id, token)

        try:
            await email_service.send_verification_email(record.to_user(), token.raw)
        except EmailDeliveryError:
            return _json(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                error_response("Failed to send verification email. Please try again later."),
            )

        return _json(
            status.HTTP_200_OK,
            success_response("Verification email sent! Please check your inbox."),
        )
    except Exception as e:
        return _server_error(
            "resend_verification_failed", "Error resending verification email", e
        )
