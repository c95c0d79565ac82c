from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Note: models are registered in app.db.models; import that package before
# calling Base.metadata.create_all
