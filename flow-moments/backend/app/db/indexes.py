# app/db/indexes.py
"""
Índices que usa el pipeline de notificaciones.
Los datos los escribe la app móvil; aquí solo aseguramos lecturas rápidas.
"""
from pymongo import ASCENDING

def ensure_indexes(db) -> None:
    # friendships: el autor puede estar en cualquiera de los dos lados
    db["friendships"].create_index([("from_user_id", ASCENDING), ("status", ASCENDING)])
    db["friendships"].create_index([("to_user_id", ASCENDING), ("status", ASCENDING)])

    # profiles: _id = user id; búsqueda inversa por token para la limpieza
    db["profiles"].create_index([("fcm_token", ASCENDING)], sparse=True)
