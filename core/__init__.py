"""core/ -- Configuration and the error taxonomy.

Layer rule: core/ is the kernel. It imports only stdlib + third-party
libraries, never api/, auth/, or blog/.
"""
