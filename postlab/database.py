from sqlalchemy import create_engine, Column, Integer, String, Text
from sqlalchemy.orm import declarative_base, sessionmaker

# Database setup
DEFAULT_DATABASE_URL = "sqlite:///./postlab_posts.db"
Base = declarative_base()

class Post(Base):
    """One row of the posts table the corpus loader reads from."""
    __tablename__ = "posts"
    
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(500))
    text = Column(Text)

def make_engine(database_url: str = DEFAULT_DATABASE_URL):
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    return create_engine(database_url, connect_args=connect_args)

def make_session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create all tables
def create_tables(engine):
    Base.metadata.create_all(bind=engine)
