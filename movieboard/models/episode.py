# movieboard/models/episode.py
"""Episodes and the streaming servers that host them"""
from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ..database import Base, generate_id


class Episode(Base):
    __tablename__ = "episodes"
    __table_args__ = (
        UniqueConstraint("movie_id", "slug", name="uq_episode_movie_slug"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, index=True)
    movie_id = Column(String(36), ForeignKey("movies.id", ondelete="CASCADE"), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    movie = relationship("Movie", back_populates="episodes")
    servers = relationship(
        "EpisodeServer",
        back_populates="episode",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="EpisodeServer.created_at"
    )

    def __repr__(self):
        return f"<Episode(id={self.id}, slug={self.slug})>"


class EpisodeServer(Base):
    """One playable source of an episode (embed page, HLS playlist, mp4)"""
    __tablename__ = "episode_servers"
    __table_args__ = (
        UniqueConstraint("episode_id", "server_name", name="uq_server_episode_name"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    server_name = Column(String(255), nullable=False)
    filename = Column(String(500), nullable=True)
    link_embed = Column(String(1000), nullable=True)
    link_m3u8 = Column(String(1000), nullable=True)
    link_mp4 = Column(String(1000), nullable=True)
    episode_id = Column(String(36), ForeignKey("episodes.id", ondelete="CASCADE"), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    episode = relationship("Episode", back_populates="servers")
    watch_history = relationship(
        "WatchHistory",
        back_populates="episode_server",
        cascade="all, delete-orphan",
        passive_deletes=True
    )
