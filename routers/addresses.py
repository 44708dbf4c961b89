from fastapi import APIRouter, HTTPException, status, Request, Response
from utils.deps import user_dependency, db_dependency
from schemas.address_schemas import AddressResponse, CreateAddressRequest, UpdateAddressRequest
from services.address_service import AddressService
from services.auth_service import AuthService
from middleware.rate_limiter import limiter, ACCOUNT_READ_LIMIT, ACCOUNT_WRITE_LIMIT

router = APIRouter(
    prefix="/users/me/addresses",
    tags=["addresses"]
)


def _active_user_id(user: dict, db) -> str:
    model = AuthService.get_active_user_by_id(db=db, user_id=user.get("user_id"))

    if not model:
        raise HTTPException(status_code=404, detail="User not found")
    return model.id


@router.get("", response_model=list[AddressResponse])
@limiter.limit(ACCOUNT_READ_LIMIT)
async def list_addresses(request: Request, user: user_dependency, db: db_dependency):
    return AddressService.list_addresses(_active_user_id(user, db), db)


@router.post("", response_model=AddressResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(ACCOUNT_WRITE_LIMIT)
async def create_address(request: Request, body: CreateAddressRequest, user: user_dependency, db: db_dependency):
    return AddressService.create_address(_active_user_id(user, db), body, db)


@router.put("/{address_id}", response_model=AddressResponse)
@limiter.limit(ACCOUNT_WRITE_LIMIT)
async def update_address(request: Request, address_id: str, body: UpdateAddressRequest,
    user: user_dependency, db: db_dependency):
    return AddressService.update_address(address_id, _active_user_id(user, db), body, db)


@router.delete("/{address_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(ACCOUNT_WRITE_LIMIT)
async def delete_address(request: Request, address_id: str, user: user_dependency, db: db_dependency):
    AddressService.delete_address(address_id, _active_user_id(user, db), db)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
