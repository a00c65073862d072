"""
Request models validated before touching the database or scanning it.
"""

from pydantic import BaseModel, field_validator

from ..vector.registry import list_supported_types, resolve


class InitializeRequest(BaseModel):
    db_path: str
    embedding_length: int
    data_type: str
    description: str = ""

    @field_validator('db_path')
    @classmethod
    def db_path_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('db_path cannot be empty')
        return v

    @field_validator('embedding_length')
    @classmethod
    def embedding_length_must_be_positive(cls, v):
        if v < 1:
            raise ValueError('embedding_length must be 1 or greater')
        return v

    @field_validator('data_type')
    @classmethod
    def data_type_must_be_supported(cls, v):
        if v.strip().lower() not in list_supported_types():
            raise ValueError(f'data_type must be one of: {list_supported_types()}')
        return resolve(v).name


class SearchRequest(BaseModel):
    metric: str
    top_k: int
    strategy: str
    batch_size: int

    @field_validator('metric', 'strategy')
    @classmethod
    def name_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('name cannot be empty')
        return v.strip().lower()

    @field_validator('top_k')
    @classmethod
    def top_k_must_not_be_negative(cls, v):
        if v < 0:
            raise ValueError('top_k must be 0 or greater')
        return v

    @field_validator('batch_size')
    @classmethod
    def batch_size_must_be_positive(cls, v):
        if v < 1:
            raise ValueError('batch_size must be 1 or greater')
        return v
