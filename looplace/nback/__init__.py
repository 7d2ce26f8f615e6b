"""2-back working-memory task: trials, engine and metrics."""