"""
Instrument definition registry.

Modules
-------
registry : load_instrument_definition() + InstrumentRegistry — loads the
           JSON definitions under ``config/instruments/`` once and serves
           them by ``instrument_id``.
"""
