ERRORS = {
  "E_NO_SPLITS": "No splits found.",
  "E_NO_BLOCKS": "No blocks found in the first split.",
  "E_DECODE": "Step file could not be decoded",
  "E_ENCODE": "Step file could not be encoded",
  "E_CONTAINER_IO": "Step container could not be read or written",
  "E_FILE_IO": "Step file could not be read or written",
  "E_SOURCE_NOT_FOUND": "No STEP.DAT or STEP directory found.",
}
