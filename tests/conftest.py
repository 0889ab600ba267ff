import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Field, Session, SQLModel, create_engine

from starstorage import EntityStorage, MemoryContext, StorageConfig, StorageModel, set_config


class Note(StorageModel):
    """Record type used throughout the storage tests"""
    text: str = ""


class PinnedNote(Note):
    pinned: bool = True


class Task(SQLModel, table=True):
    """Table model for SQL context tests"""
    __tablename__ = "storage_test_tasks"

    id: str = Field(primary_key=True)
    title: str
    priority: int = 0


@pytest.fixture(autouse=True)
def storage_config():
    """Pin a default configuration so environment variables don't leak in"""
    config = StorageConfig()
    set_config(config)
    yield config
    set_config(None)


@pytest.fixture
def context():
    return MemoryContext()


@pytest.fixture
def notes(context):
    """Storage bound to an empty memory context"""
    storage = EntityStorage(Note)
    storage.fetch(context)
    return storage


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine, expire_on_commit=False) as session:
        yield session
