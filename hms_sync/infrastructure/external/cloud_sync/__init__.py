"""
Pipeline de sincronización one-way: base cloud -> base local.

Se ejecuta como tarea en background dentro del proceso host, cada
SYNC_INTERVAL_SECONDS, no como parte de un request.

Objetivos de diseño:
- Idempotencia: aplicar dos veces la misma fila remota no duplica datos
  (upsert decidido por una consulta de existencia sobre las columnas clave).
- Semántica at-least-once: la fila remota se marca Synced = 1 solo después
  de aplicarla localmente.
- Reglas por tabla explícitas (columnas de identidad local, FKs).
"""
