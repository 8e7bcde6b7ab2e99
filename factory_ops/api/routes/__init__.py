"""
API route modules, one per area:
- production: work orders, stage flow, batches and quantities
- quality: QC gate decisions, QC records and NCRs
- external: partners, moves, overdue returns and reminders
- logistics: packing, dispatch and ageing
- sales, procurement, finance, she: read-only views
- reports: CSV / Excel / PDF exports

Routers are included from factory_ops.api.main (under the /api/v1 prefix).
"""
