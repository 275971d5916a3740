import os
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    # 🎯 Application
    APP_NAME: str = "Movieboard API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"

    # 🌐 Server
    HOST: str = '0.0.0.0'
    PORT: int = 8000

    # 🗄️ Database - PostgreSQL
    DATABASE_URL: str  # must come from env
    DB_ECHO: bool = False

    # 🔒 CORS
    ALLOWED_ORIGINS: str = "http://localhost:3000"

    # 🔐 Session cookies
    SECURE_COOKIES: bool = True
    HTTPS_ONLY: bool = True
    SESSION_COOKIE_DAYS: int = 7

    # 🔥 Firebase Admin
    FIREBASE_CREDENTIALS_PATH: Optional[str] = None
    FIREBASE_SERVICE_ACCOUNT_BASE64: Optional[str] = None
    FIREBASE_PROJECT_ID: Optional[str] = None

    # ☁️ AWS S3 (direct browser uploads)
    AWS_REGION: str = "ap-southeast-1"
    AWS_ACCESS_KEY_ID: Optional[str] = None
    AWS_SECRET_ACCESS_KEY: Optional[str] = None
    AWS_S3_BUCKET_NAME: Optional[str] = None
    PRESIGNED_URL_EXPIRES: int = 3600

    # 🖼️ Cloudinary (avatars)
    CLOUDINARY_CLOUD_NAME: Optional[str] = None
    CLOUDINARY_API_KEY: Optional[str] = None
    CLOUDINARY_API_SECRET: Optional[str] = None

    # 🎬 KKPhim catalog
    KKPHIM_BASE_URL: str = "https://phimapi.com"
    KKPHIM_TIMEOUT: float = 30.0

    # 🔎 MongoDB Atlas vector search
    MONGODB_URL: Optional[str] = None
    MONGODB_DATABASE: str = "movieboard"
    MOVIE_VECTOR_COLLECTION: str = "Movie"
    MOVIE_VECTOR_INDEX: str = "content-vector-index"
    MOVIE_VECTOR_PATH: str = "contentEmbedding"

    # 🧠 Embeddings (OpenAI-compatible)
    EMBEDDING_API_URL: str = "https://api.openai.com/v1/embeddings"
    EMBEDDING_API_KEY: Optional[str] = None
    EMBEDDING_MODEL: str = "text-embedding-3-small"

    # 🔐 Admin Account
    FIRST_ADMIN_UID: Optional[str] = None

    # 📊 Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        extra = 'ignore'

    @property
    def allowed_origins_list(self) -> List[str]:
        """Parse ALLOWED_ORIGINS string into list"""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(',') if origin.strip()]

    @property
    def is_firebase_enabled(self) -> bool:
        """Check if Firebase Admin credentials are available"""
        if self.FIREBASE_SERVICE_ACCOUNT_BASE64:
            return True
        return bool(
            self.FIREBASE_CREDENTIALS_PATH
            and os.path.exists(self.FIREBASE_CREDENTIALS_PATH)
        )

    @property
    def is_s3_enabled(self) -> bool:
        """Check if S3 presigned uploads are configured"""
        return bool(
            self.AWS_ACCESS_KEY_ID
            and self.AWS_SECRET_ACCESS_KEY
            and self.AWS_S3_BUCKET_NAME
        )

    @property
    def s3_public_base_url(self) -> str:
        return f"https://{self.AWS_S3_BUCKET_NAME}.s3.{self.AWS_REGION}.amazonaws.com"

    @property
    def is_cloudinary_enabled(self) -> bool:
        return bool(
            self.CLOUDINARY_CLOUD_NAME
            and self.CLOUDINARY_API_KEY
            and self.CLOUDINARY_API_SECRET
        )

    @property
    def is_vector_search_enabled(self) -> bool:
        """Content search needs both MongoDB and an embedding key"""
        return bool(self.MONGODB_URL and self.EMBEDDING_API_KEY)


settings = Settings()
