from pydantic import AliasChoices, BaseModel, Field


class AddCartItemRequest(BaseModel):
    product_id: int = Field(validation_alias=AliasChoices("product_id", "productId"))
    quantity: int


class SetQuantityRequest(BaseModel):
    quantity: int
